"""Application entry point for the Blog API server."""

from blogapi.app import App
from blogapi.config import Config
from blogapi.logging import setup_logging
from blogapi.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
