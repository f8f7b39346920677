from pathlib import Path
import time
from typing import Union

from langchain_core.prompts import PromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from util.logging_util import setup_logger, log_llm_interaction
from util.secrets import get_gemini_api_key

logger = setup_logger(__name__)

DEFAULT_MODEL_NAME = "gemini-3-flash-preview"


def _extract_text(response_content) -> str:
    """Flatten a chat model response into a plain string.

    Gemini returns content either as a string or as a list of parts.
    """
    if isinstance(response_content, list):
        text_parts = [
            part.get('text', '') for part in response_content
            if isinstance(part, dict) and 'text' in part
        ]
        return ''.join(text_parts)
    return response_content or ""


def get_llm_response(
    template_path: Union[str, Path],
    params: dict,
    model_name: str = DEFAULT_MODEL_NAME,
    temperature: float = 0.3,
) -> str:
    """
    Generates a response from the LLM based on a Jinja2 template file and parameters.

    Args:
        template_path: The path to the Jinja2 template file.
        params: A dictionary of parameters to populate the template.
        model_name: The name of the Gemini model to use.
        temperature: Sampling temperature passed to the model.

    Returns:
        The string response from the LLM.
    """
    start_time = time.time()

    llm = ChatGoogleGenerativeAI(
        model=model_name,
        google_api_key=get_gemini_api_key(),
        temperature=temperature,
    )

    template_content = Path(template_path).read_text()

    # Create a prompt template that treats the input as a Jinja2 template
    prompt = PromptTemplate.from_template(template_content, template_format="jinja2")
    chain = prompt | llm

    response = chain.invoke(params)
    response_content = _extract_text(response.content)

    duration_ms = (time.time() - start_time) * 1000
    log_llm_interaction(logger, str(template_path), params, response_content, model_name, duration_ms)

    return response_content
