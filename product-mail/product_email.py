import logging
import os
from pathlib import Path
from typing import NamedTuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from mailgun_client import DEFAULT_API_BASE, MailProvider

logger = logging.getLogger(__name__)

SUBJECT = "Product Information"


class ConfigError(Exception):
    pass


class Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: str = ""
    api_key: str = Field(default="", repr=False)
    from_name: str = ""
    from_email: str = ""
    api_base: str = DEFAULT_API_BASE


class ProductEmailRequest(BaseModel):
    # missing or null fields take their zero value; NaN and Infinity are rejected
    model_config = ConfigDict(strict=True, populate_by_name=True, allow_inf_nan=False)

    product_name: str = ""
    price: float = 0.0
    description: str = ""
    recipient_email: str = Field(default="", alias="email")

    @model_validator(mode="before")
    @classmethod
    def null_body(cls, data):
        return {} if data is None else data

    @field_validator("*", mode="before")
    @classmethod
    def null_field(cls, value, info: ValidationInfo):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class SendResult(NamedTuple):
    provider_message_id: str
    provider_response_text: str


def load_config(env_file: str | os.PathLike = ".env") -> Config:
    """Preload ``env_file`` into the environment and read the Mailgun settings.

    Variables already set in the environment win over the file. Raises
    ConfigError when the file is missing or unreadable.
    """
    path = Path(env_file)
    if not path.is_file():
        raise ConfigError(f"Error loading {path} file")
    try:
        load_dotenv(path, override=False)
    except OSError as e:
        raise ConfigError(f"Error loading {path} file: {e}") from e

    return Config(
        domain=os.getenv("MAILGUN_DOMAIN", ""),
        api_key=os.getenv("MAILGUN_API_KEY", ""),
        from_name=os.getenv("MAILGUN_FROM_NAME", ""),
        from_email=os.getenv("MAILGUN_FROM_EMAIL", ""),
        api_base=os.getenv("MAILGUN_API_BASE") or DEFAULT_API_BASE,
    )


def format_product_email(data: ProductEmailRequest) -> str:
    return (
        "\n"
        "Product Details:\n"
        "---------------\n"
        f"Name: {data.product_name}\n"
        f"Price: ${data.price:.2f}\n"
        f"Description: {data.description}\n"
    )


class ProductEmailSender:
    """Formats product details and hands them to the mail provider."""

    def __init__(self, config: Config, provider: MailProvider):
        self.config = config
        self.provider = provider

    @property
    def sender_address(self) -> str:
        return f"{self.config.from_name} <{self.config.from_email}@{self.config.domain}>"

    async def send_product_email(self, data: ProductEmailRequest) -> SendResult:
        message_id, response_text = await self.provider.send(
            self.sender_address,
            SUBJECT,
            format_product_email(data),
            data.recipient_email,
        )
        logger.info("Product email for %r sent to %s (id=%s)", data.product_name, data.recipient_email, message_id)
        return SendResult(message_id, response_text)
