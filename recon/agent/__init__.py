"""Planning, synthesis and citation: the LLM half of the pipeline.

Public API::

    from recon.agent import run_auto
    result = run_auto("Tell me about the Apache Kafka project")
"""

from recon.agent.runner import AnalysisResult, run_auto, run_manual

__all__ = ["AnalysisResult", "run_auto", "run_manual"]
