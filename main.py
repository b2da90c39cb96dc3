from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from tenderchat.app.api.app import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = create_app()


def mount_chat_interface(application: FastAPI) -> None:
    from chainlit.utils import mount_chainlit

    mount_chainlit(
        app=application, target="tenderchat/ui_chainlit/app.py", path="/chainlit"
    )


mount_chat_interface(app)
