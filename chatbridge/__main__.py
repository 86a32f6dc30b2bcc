"""Run the bridge: python -m chatbridge"""

import uvicorn

from .config_loader import load_config, resolve_server_address
from .main import create_app


def main() -> None:
    config = load_config()
    host, port = resolve_server_address(config)
    app = create_app(config)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
