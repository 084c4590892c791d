"""Application entry point for the MediaGate server."""

from mediagate.app import App
from mediagate.config import Config
from mediagate.logging import setup_logging
from mediagate.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
