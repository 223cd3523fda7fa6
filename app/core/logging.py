# app/core/logging.py

"""
애플리케이션 로깅 설정 모듈입니다.

- 운영 환경: JSON 한 줄 로그 (timestamp, level, logger, message, exception)
- 개발 환경: 사람이 읽기 쉬운 텍스트 로그
setup_logging()은 애플리케이션 시작(lifespan) 및 ARQ 워커 시작 시 한 번 호출됩니다.
"""

import json
import logging
from datetime import datetime, timezone

# 로그 레코드의 extra 로 전달되면 JSON 출력에 포함할 필드
EXTRA_FIELDS = ("report_id", "report_no", "job_try", "sample_id", "user_id")


class JSONFormatter(logging.Formatter):
    """로그 레코드를 JSON 문자열로 변환합니다."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


_configured = False


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """루트 로거에 핸들러를 등록합니다. 중복 호출 시 핸들러를 다시 추가하지 않습니다."""
    global _configured
    if _configured:
        logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
        return

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _configured = True
