# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the Tool Orchestration Engine
"""

from setuptools import setup, find_packages

setup(
    name="tool-orchestration-engine",
    version="1.0.0",
    description="DAG scheduler for tool invocations with bounded parallelism, conditional branching and retries",
    author="Jason Cafarelli",
    packages=find_packages(include=["tool_orchestration", "tool_orchestration.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.0",
        "httpx>=0.24.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.22.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
)
