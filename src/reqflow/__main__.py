"""reqflow MCPサーバーのコマンドラインエントリポイント。"""

from reqflow.config import ServerConfig
from reqflow.logging import configure_logging
from reqflow.server import create_server


def main() -> None:
    config = ServerConfig()
    configure_logging(config.log_level, json_logs=config.log_json)
    mcp = create_server(config)
    if config.transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="streamable-http", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
