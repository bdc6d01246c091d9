import argparse
import logging

import config
import uvicorn

from relaybox.api import create_app
from relaybox.policy import RelayPolicy
from relaybox.release import ReleasePipeline
from relaybox.remailer import Remailer
from relaybox.store import MessageStore


logger = logging.getLogger(__name__)


def build_app(app_config: config.Config):
    policy = RelayPolicy.from_config(app_config)
    store = MessageStore(app_config)
    pipeline = ReleasePipeline(store, Remailer(app_config), policy)

    logger.info("Relay policy: allowlist %(pattern)s, return path %(return_path)s", {
        "pattern": policy.allowed_recipients.pattern if policy.allowed_recipients else "(none)",
        "return_path": policy.return_path or "(none)",
    })

    return create_app(pipeline, store)


def run():
    parser = argparse.ArgumentParser(
        prog="relayboxd",
        description="HTTP API for releasing captured email messages via an SMTP relay"
    )
    parser.add_argument("-c", "--config-file", default="/etc/relaybox.cfg", type=argparse.FileType())
    parser.add_argument("-p", "--port", type=int)

    args = parser.parse_args()

    # Load the configuration
    app_config = config.Config(args.config_file)

    # Set up the root logger
    logging.basicConfig(level=app_config.get("log_level", logging.WARNING))

    app = build_app(app_config)

    listen_host = app_config.get("http_host", "127.0.0.1")
    listen_port = args.port or app_config.get("http_port", 8025)
    uvicorn.run(app, host=listen_host, port=listen_port)


if __name__ == "__main__":
    run()
