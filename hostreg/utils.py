# hostreg/utils.py
import time
import uuid


def gen_id(prefix: str = "id") -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def now_ts() -> int:
    return int(time.time())


def utf8_len(text: str) -> int:
    return len(text.encode("utf-8"))
