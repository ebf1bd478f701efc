import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from chatml_stream.config.settings import settings


LOG_FILE_NAME = "agent.log"


class JsonFormatter(logging.Formatter):
    """一行一个 JSON 对象；record.extra 中的字段平铺到顶层。"""

    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_type"] = record.exc_info[0].__name__
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(level=None) -> logging.Logger:
    """配置 chatml_stream 日志；重复调用只调整级别，不会重复挂 handler。

    level 为空时取 settings.log_level，DEBUG 级别下会记录被丢弃的畸形流行。
    """
    level = level or settings.log_level
    logger = logging.getLogger("chatml_stream")
    logger.setLevel(level)
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler):
            h.setLevel(level)
            return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(JsonFormatter(redact_content=settings.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
