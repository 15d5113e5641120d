import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
import json
from typing import FrozenSet, Optional

from dotenv import load_dotenv


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AppConfig:
    database_url: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 24
    log_level: str = "INFO"
    currency: str = "PHP"
    delivery_fee: Decimal = Decimal("100")
    receipt_payment_methods: FrozenSet[str] = field(default_factory=lambda: frozenset({"gcash"}))

    def requires_receipt(self, payment_method: Optional[str]) -> bool:
        return (payment_method or "").strip().lower() in self.receipt_payment_methods


def validate_currency(value: Optional[str]) -> str:
    v = (value or "PHP").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def validate_log_level(value: Optional[str]) -> str:
    v = (value or "INFO").strip().upper()
    if v not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {value}")
    return v


def parse_delivery_fee(value) -> Decimal:
    try:
        fee = Decimal(str(value if value not in (None, "") else "100"))
    except InvalidOperation:
        raise ValueError(f"Invalid delivery fee: {value}")
    if fee < 0:
        raise ValueError("Delivery fee must be >= 0")
    return fee.quantize(Decimal("0.01"))


def parse_method_list(value: Optional[str]) -> FrozenSet[str]:
    raw = value if value is not None else "gcash"
    return frozenset(m.strip().lower() for m in raw.split(",") if m.strip())


def _load_settings_file() -> dict:
    path = Path(__file__).resolve().parents[1] / "data" / "settings.json"
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


def load_env() -> AppConfig:
    # 非機密設定以 data/settings.json 為主，.env 與環境變數為後備
    load_dotenv()
    s = _load_settings_file()
    database_url = os.getenv("DATABASE_URL", "sqlite:///data/flowershop.db")
    jwt_secret = os.getenv("JWT_SECRET", "dev_secret")
    ttl = int(os.getenv("TOKEN_TTL_HOURS", "24"))
    if ttl <= 0:
        raise ValueError("TOKEN_TTL_HOURS must be > 0")
    return AppConfig(
        database_url=database_url,
        jwt_secret=jwt_secret,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        token_ttl_hours=ttl,
        log_level=validate_log_level(os.getenv("LOG_LEVEL")),
        currency=validate_currency(s.get("CURRENCY") or os.getenv("CURRENCY")),
        delivery_fee=parse_delivery_fee(s.get("DELIVERY_FEE") or os.getenv("DELIVERY_FEE")),
        receipt_payment_methods=parse_method_list(
            s.get("RECEIPT_PAYMENT_METHODS") or os.getenv("RECEIPT_PAYMENT_METHODS")
        ),
    )
