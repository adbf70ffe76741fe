"""Answer generation: LLM over the retrieved context, with a template fallback."""
import logging
from typing import Any, Optional

from langchain_core.documents import Document
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate

from src.utils.config import (
    LLM_MODEL,
    LLM_CONFIG,
    FALLBACK_CHAR_LIMIT,
    DEBUG
)
from src.utils.error_handler import ModelError

logger = logging.getLogger(__name__)

# Template for grounded news answers
RESPONSE_TEMPLATE = """You are a helpful news assistant. Answer the question based only on the provided news articles.
If the answer cannot be found in the articles, say "I don't have enough information to answer that."

Use the following articles as context:

{context}

Question: {question}
Answer:"""

ANSWER_PROMPT = PromptTemplate(
    template=RESPONSE_TEMPLATE,
    input_variables=["context", "question"]
)


def build_llm(model_name: str = LLM_MODEL):
    """
    Load a local HuggingFace text-generation model as a langchain LLM.

    Runs on CPU in FP32. Raises ModelError if the model can't be loaded.
    """
    try:
        import torch
        from transformers import (
            AutoTokenizer,
            AutoModelForCausalLM,
            pipeline,
            GenerationConfig
        )
        from langchain_huggingface import HuggingFacePipeline

        tokenizer = AutoTokenizer.from_pretrained(model_name)

        # Force FP32 and CPU, disable all mixed precision
        torch.set_default_dtype(torch.float32)
        model = AutoModelForCausalLM.from_pretrained(
            model_name,
            torch_dtype=torch.float32,
            device_map="cpu",
            trust_remote_code=True,
            use_cache=True
        )
        model = model.eval()

        generation_config = GenerationConfig(
            do_sample=LLM_CONFIG["do_sample"],
            temperature=LLM_CONFIG["temperature"],
            top_p=LLM_CONFIG["top_p"],
            top_k=LLM_CONFIG["top_k"],
            repetition_penalty=LLM_CONFIG["repetition_penalty"],
            max_new_tokens=LLM_CONFIG["max_new_tokens"],
            pad_token_id=tokenizer.pad_token_id if tokenizer.pad_token_id is not None else LLM_CONFIG["pad_token_id"]
        )

        pipe = pipeline(
            "text-generation",
            model=model,
            tokenizer=tokenizer,
            generation_config=generation_config,
            max_new_tokens=LLM_CONFIG["max_new_tokens"],
            return_full_text=False,  # Only the answer, not the echoed prompt
            batch_size=1,
            framework="pt",
        )
        llm = HuggingFacePipeline(pipeline=pipe)
        logger.info(f"Loaded generation model {model_name}")
        return llm

    except Exception as e:
        logger.error(f"Failed to load generation model {model_name}: {e}", exc_info=DEBUG)
        raise ModelError(f"Generation model initialization failed: {str(e)}") from e


def fallback_answer(document: Document, char_limit: int = FALLBACK_CHAR_LIMIT) -> str:
    """Extractive answer quoting the start of the top-ranked article."""
    metadata = document.metadata or {}
    answer = f'Based on the article "{metadata.get("title") or ""}": {document.page_content[:char_limit]}...'
    url = (metadata.get("url") or "").strip()
    if url:
        answer += f" [Read more: {url}]"
    return answer


class AnswerGenerator:
    """Runs the answer prompt through an LLM. Without an LLM every call raises ModelError."""

    def __init__(self, llm: Optional[Any] = None, prompt: PromptTemplate = ANSWER_PROMPT):
        self.llm = llm
        self.prompt = prompt
        self._chain = (prompt | llm | StrOutputParser()) if llm is not None else None

    @property
    def available(self) -> bool:
        return self._chain is not None

    async def generate(self, question: str, context: str) -> str:
        if self._chain is None:
            raise ModelError("No generation model is available")
        try:
            logger.info("Sending request to the generation model...")
            return await self._chain.ainvoke({"context": context, "question": question})
        except Exception as e:
            raise ModelError(f"Generation failed: {e}") from e
