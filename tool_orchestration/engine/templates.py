# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Built-in workflow templates.

Three reference workflows covering a linear chain, a fan-out/fan-in and
conditional branching. Loaded at start-up when
`scheduler.load_builtin_workflows` is enabled in config.
"""

from typing import List

from .models import (
    ErrorHandling,
    ExecutionConfig,
    RetryPolicy,
    ToolNode,
    WorkflowDefinition,
    WorkflowEdge,
)


def _edge(from_: str, to: str, condition: str = None) -> WorkflowEdge:
    return WorkflowEdge(**{"from": from_, "to": to, "condition": condition})


def sequential_processing() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="sequential-processing",
        name="Sequential Data Processing",
        description="Process data through multiple sequential transformations",
        tools=[
            ToolNode(id="fetch-data", name="Fetch Data", params={"source": "api/data"}),
            ToolNode(id="validate-data", name="Validate Data", dependencies={"fetch-data"},
                     params={"schema": "data-schema-v1"}),
            ToolNode(id="transform-data", name="Transform Data", dependencies={"validate-data"},
                     params={"format": "normalized"}),
            ToolNode(id="store-data", name="Store Data", dependencies={"transform-data"},
                     params={"destination": "database"}),
        ],
        edges=[
            _edge("fetch-data", "validate-data"),
            _edge("validate-data", "transform-data"),
            _edge("transform-data", "store-data"),
        ],
        config=ExecutionConfig(
            max_parallel=1,
            timeout_ms=30000,
            retry_policy=RetryPolicy(max_retries=3, backoff_multiplier=2, max_backoff_ms=10000),
            error_handling=ErrorHandling.FAIL_FAST,
        ),
    )


def parallel_analysis() -> WorkflowDefinition:
    analyses = ["sentiment-analysis", "topic-modeling", "entity-extraction"]
    return WorkflowDefinition(
        id="parallel-analysis",
        name="Parallel Analysis Pipeline",
        description="Analyze data using multiple parallel processors",
        tools=[
            ToolNode(id="load-dataset", name="Load Dataset", params={"dataset": "analytics-2024"}),
            ToolNode(id="sentiment-analysis", name="Sentiment Analysis", dependencies={"load-dataset"},
                     params={"model": "bert-sentiment"}),
            ToolNode(id="topic-modeling", name="Topic Modeling", dependencies={"load-dataset"},
                     params={"algorithm": "lda", "topics": 10}),
            ToolNode(id="entity-extraction", name="Entity Extraction", dependencies={"load-dataset"},
                     params={"model": "ner-v2"}),
            ToolNode(id="merge-results", name="Merge Results", dependencies=set(analyses),
                     params={"format": "unified-report"}),
            ToolNode(id="generate-report", name="Generate Report", dependencies={"merge-results"},
                     params={"template": "executive-summary"}),
        ],
        edges=(
            [_edge("load-dataset", analysis) for analysis in analyses]
            + [_edge(analysis, "merge-results") for analysis in analyses]
            + [_edge("merge-results", "generate-report")]
        ),
        config=ExecutionConfig(
            max_parallel=3,
            timeout_ms=60000,
            retry_policy=RetryPolicy(max_retries=2, backoff_multiplier=1.5, max_backoff_ms=5000),
            error_handling=ErrorHandling.CONTINUE,
        ),
    )


def conditional_deployment() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="conditional-deployment",
        name="Conditional Deployment Pipeline",
        description="Deploy with conditional paths based on test results",
        tools=[
            ToolNode(id="run-tests", name="Run Tests", params={"suite": "all"}),
            ToolNode(id="analyze-coverage", name="Analyze Coverage", dependencies={"run-tests"},
                     params={"threshold": 80}),
            ToolNode(id="build-artifacts", name="Build Artifacts", dependencies={"analyze-coverage"},
                     params={"target": "production"}),
            ToolNode(id="deploy-staging", name="Deploy to Staging", dependencies={"build-artifacts"},
                     params={"environment": "staging"}),
            ToolNode(id="run-integration-tests", name="Run Integration Tests",
                     dependencies={"deploy-staging"}, params={"suite": "integration"}),
            ToolNode(id="deploy-production", name="Deploy to Production",
                     dependencies={"run-integration-tests"},
                     params={"environment": "production", "strategy": "blue-green"}),
            ToolNode(id="rollback", name="Rollback", params={"target": "previous-version"}),
        ],
        edges=[
            _edge("run-tests", "analyze-coverage"),
            _edge("analyze-coverage", "build-artifacts", "coverage >= 80"),
            _edge("analyze-coverage", "rollback", "coverage < 80"),
            _edge("build-artifacts", "deploy-staging"),
            _edge("deploy-staging", "run-integration-tests"),
            _edge("run-integration-tests", "deploy-production", "tests.passed"),
            _edge("run-integration-tests", "rollback", "!tests.passed"),
        ],
        config=ExecutionConfig(
            max_parallel=2,
            timeout_ms=300000,
            retry_policy=RetryPolicy(max_retries=1, backoff_multiplier=1, max_backoff_ms=1000),
            error_handling=ErrorHandling.ROLLBACK,
        ),
    )


def builtin_workflows() -> List[WorkflowDefinition]:
    return [sequential_processing(), parallel_analysis(), conditional_deployment()]
