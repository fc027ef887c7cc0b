"""
Entry point for the Solidtime MCP server (stdio transport).

    $ solidtime-mcp
    $ python -m solidtime_mcp
"""

import logging
import sys

from solidtime_mcp.config import ConfigError, EnvSettings, load_config
from solidtime_mcp.server import create_server


def configure_logging(level: str = "INFO") -> None:
    """Log to stderr; stdout carries the MCP protocol stream."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    settings = EnvSettings()
    configure_logging(settings.log_level)

    try:
        config = load_config(settings)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("\nTo configure the server:", file=sys.stderr)
        print("1. Create a token in Solidtime under Settings > Personal Access Tokens", file=sys.stderr)
        print("2. Set it as an environment variable (or in a .env file):", file=sys.stderr)
        print("   export SOLIDTIME_API_TOKEN='your-token-here'", file=sys.stderr)
        print("   export SOLIDTIME_ORGANIZATION_ID='your-organization-id'", file=sys.stderr)
        print("   export SOLIDTIME_BASE_URL='https://app.solidtime.io'", file=sys.stderr)
        sys.exit(1)

    if not config.default_member_id:
        logging.getLogger(__name__).warning(
            "SOLIDTIME_DEFAULT_MEMBER_ID is not set; timer tools will need member_id"
        )

    mcp = create_server(config)
    logging.getLogger(__name__).info(
        "Solidtime MCP server started for organization %s", config.organization_id
    )
    mcp.run()


if __name__ == "__main__":
    main()
