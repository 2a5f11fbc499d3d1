import argparse

from . import ConsoleChat
from .config import Settings, configure_logging


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the console chat server.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8050)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level)
    app = ConsoleChat(settings=settings)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
