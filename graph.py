# graph.py
import logging

from langgraph.graph import StateGraph

from encoder import encode_image
from models import PipelineState
from ocr import ContactExtractor

logger = logging.getLogger(__name__)


def encode_node(state: PipelineState) -> PipelineState:
    image = state["image"]
    logger.debug("Encoding %s (%d bytes)", image.name, image.size)
    return {"encoded": encode_image(image.data)}


def create_graph(extractor: ContactExtractor):
    async def extract_node(state: PipelineState) -> PipelineState:
        # encode has fully finished before the request goes out
        contacts = await extractor.extract(state["encoded"], state["image"].media_type)
        return {"contacts": contacts}

    sg = StateGraph(PipelineState)
    sg.add_node("encode", encode_node)
    sg.add_node("extract", extract_node)

    sg.set_entry_point("encode")
    sg.add_edge("encode", "extract")
    sg.set_finish_point("extract")

    return sg.compile()
