"""Request pipeline: orchestrator, shared context and result streaming.

Import from `dubline.pipeline.orchestrator`; stages import `dubline.pipeline.context`
and must not pull the orchestrator in.
"""
