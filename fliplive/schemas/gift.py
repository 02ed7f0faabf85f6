"""Gift catalogue ODM schema."""

from beanie import Document, Indexed


class Gift(Document):
    gift_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    name: str
    coins: int
    active: bool = True

    class Settings:
        name = "gift"
