import logging
import sys

from fastmcp import FastMCP

import config

mcp = FastMCP("Figma MCP")


def configure_logging(level: str = None):
    # stdout belongs to the stdio transport.
    logging.basicConfig(
        level=level or config.get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main():
    configure_logging()
    # Tools live on figma_tools.mcp, which is not this module's `mcp` when
    # run as a script.
    import figma_tools

    transport = config.get_transport()
    logging.getLogger(__name__).info("Starting Figma MCP server (%s)", transport)
    if transport == "stdio":
        figma_tools.mcp.run()
    else:
        figma_tools.mcp.run(transport=transport, host=config.get_host(), port=config.get_port())


if __name__ == "__main__":
    main()
