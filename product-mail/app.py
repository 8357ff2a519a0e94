import asyncio
import logging
import os
import sys

import uvicorn
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mailgun_client import MailgunClient
from product_email import ConfigError, ProductEmailRequest, ProductEmailSender, load_config

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SECONDS = 10.0
PORT = 8080

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "http://localhost:5173",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}


def get_sender(request: Request) -> ProductEmailSender:
    return request.app.state.email_sender


def create_app(email_sender: ProductEmailSender, send_timeout: float = SEND_TIMEOUT_SECONDS) -> FastAPI:
    app = FastAPI(title="Product Mail Service")
    app.state.email_sender = email_sender
    app.state.send_timeout = send_timeout

    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/send-product")
    async def send_product(request: Request, sender: ProductEmailSender = Depends(get_sender)):
        try:
            data = ProductEmailRequest.model_validate_json(await request.body())
        except ValidationError:
            return JSONResponse({"error": "Invalid request body"}, status_code=400)

        try:
            result = await asyncio.wait_for(
                sender.send_product_email(data),
                timeout=request.app.state.send_timeout,
            )
        except Exception:
            logger.exception("Failed to send product email to %s", data.recipient_email)
            return JSONResponse({"error": "Failed to send email"}, status_code=500)

        return {
            "message": "Email sent successfully",
            "id": result.provider_message_id,
            "response": result.provider_response_text,
        }

    return app


def build_app(env_file: str = ".env") -> FastAPI:
    config = load_config(env_file)
    provider = MailgunClient(config.domain, config.api_key, api_base=config.api_base)
    return create_app(ProductEmailSender(config, provider))


def log_level(name: str | None) -> int:
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def main() -> None:
    logging.basicConfig(
        level=log_level(os.getenv("LOG_LEVEL")),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        app = build_app()
    except ConfigError as e:
        logger.critical("%s", e)
        sys.exit(1)
    uvicorn.run(app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
