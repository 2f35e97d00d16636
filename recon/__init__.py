"""Recon: goal-driven web intelligence pipeline.

Public API::

    from recon import run_auto, run_manual
    result = run_auto("Tell me about the Apache Kafka project")
"""

from recon.agent.runner import run_auto, run_manual

__all__ = ["run_auto", "run_manual"]
