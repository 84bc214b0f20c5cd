from __future__ import annotations

import logging
from typing import Any, TypedDict

from langchain_core.callbacks import UsageMetadataCallbackHandler
from langchain_core.messages import HumanMessage
from langchain_core.output_parsers import StrOutputParser
from langgraph.graph import END, START, StateGraph

from .config import StageLLMConfig
from .errors import ModelCallError
from .model_manager import ModelManager
from .models import ExtractionResult
from .prompts import compose_extraction_prompt


logger = logging.getLogger(__name__)


class ExtractionWorkflowState(TypedDict, total=False):
    transcript: str
    prompt_template: str | None
    prompt: str
    response: str


def run_extraction_workflow(
    *,
    transcript: str,
    stage_cfg: StageLLMConfig,
    temperature: float,
    prompt_template: str | None = None,
    prompt: str | None = None,
    model: Any | None = None,
) -> ExtractionResult:
    """Compose the final-round prompt and send it to the chat model in one pass.

    A prompt composed and saved beforehand is passed through unchanged.
    """
    chat_model = model if model is not None else ModelManager(stage_cfg).get_chat_model(temperature=temperature)
    usage_callback = UsageMetadataCallbackHandler()
    invoke_config = {"callbacks": [usage_callback]}
    chain = chat_model | StrOutputParser()

    def compose_prompt(state: ExtractionWorkflowState) -> ExtractionWorkflowState:
        if state.get("prompt"):
            return {"prompt": state["prompt"]}
        prompt = compose_extraction_prompt(state["transcript"], state.get("prompt_template"))
        logger.info("Composed extraction prompt (%s chars)", len(prompt))
        return {"prompt": prompt}

    def call_model(state: ExtractionWorkflowState) -> ExtractionWorkflowState:
        logger.info("Calling chat model %s", stage_cfg.model)
        try:
            response = chain.invoke([HumanMessage(content=state["prompt"])], config=invoke_config)
        except Exception as exc:  # noqa: BLE001
            raise ModelCallError(f"Chat model call failed: {exc}") from exc
        return {"response": response}

    graph = StateGraph(ExtractionWorkflowState)
    graph.add_node("compose_prompt", compose_prompt)
    graph.add_node("call_model", call_model)
    graph.add_edge(START, "compose_prompt")
    graph.add_edge("compose_prompt", "call_model")
    graph.add_edge("call_model", END)
    app = graph.compile()

    initial: ExtractionWorkflowState = {"transcript": transcript, "prompt_template": prompt_template}
    if prompt is not None:
        initial["prompt"] = prompt
    result = app.invoke(initial)
    if usage_callback.usage_metadata:
        logger.info("Model usage: %s", usage_callback.usage_metadata)
    return ExtractionResult(prompt=result["prompt"], response=result["response"])
