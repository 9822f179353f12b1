# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Run the orchestration API: python -m tool_orchestration"""

from tool_orchestration.api import create_app
from tool_orchestration.core.config import get_config


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(create_app(config=config), host=config.service_host, port=config.service_port)
