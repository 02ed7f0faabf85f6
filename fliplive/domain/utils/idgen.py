from ulid import ULID


def new_ulid(prefix: str | None = None) -> str:
    value = str(ULID()).lower()
    return f"{prefix}{value}" if prefix else value


def new_live_session_id() -> str:
    return new_ulid("ls_")


def new_transaction_id() -> str:
    return new_ulid("tx_")


def new_subscription_id() -> str:
    return new_ulid("sb_")


def new_call_id() -> str:
    return new_ulid("ca_")
