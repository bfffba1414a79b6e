import click
import uvicorn
from dotenv import load_dotenv

from kubeship.logging_config import get_logging_config
from kubeship.modules.config import get_config


@click.command()
@click.option("--host", "host", default=None, help="Bind address (default: API_HOST)")
@click.option("--port", "port", default=None, type=int, help="Listen port (default: PORT)")
@click.option("--reload/--no-reload", "reload", default=None, help="Auto-reload on code changes")
def main(host, port, reload):
    """Run the Kubeship deploy API."""
    load_dotenv()
    config = get_config()

    uvicorn.run(
        "kubeship.main:app",
        host=host or config.get("host"),
        port=port or config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug") if reload is None else reload,
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    main()
