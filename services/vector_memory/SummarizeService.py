from shared.clients.ClientErrors import ClientRequestError
from shared.clients.extras.ExtrasClientInterface import ExtrasClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.settings import SummarySource, VectorSettings


class SummarizeService:
    """Replaces texts with summaries before they are embedded or queried.

    "main" summaries go through the primary LLM with the configured summary
    prompt and propagate failures. "extras" summaries go through the Extras
    API; a failed text keeps its original wording.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface | None = None,
        extras_client: ExtrasClientInterface | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client
        self._extras_client = extras_client

    async def summarize_texts(self, texts: list[str], settings: VectorSettings) -> list[str]:
        """Summarize each text in order.

        Args:
            texts (list[str]): Texts to summarize.
            settings (VectorSettings): Snapshot with summary_source and summary_prompt.

        Returns:
            list[str]: One summary per input text.

        Raises:
            RuntimeError: If the selected source has no configured client.
            ClientRequestError: If a "main" summary request fails.
        """
        if settings.summary_source == SummarySource.MAIN:
            return await self._summarize_main(texts, settings)
        return await self._summarize_extras(texts)

    async def _summarize_main(self, texts: list[str], settings: VectorSettings) -> list[str]:
        if self._llm_client is None:
            raise RuntimeError("Summary source 'main' requires LLM_ENGINE to be configured.")
        summaries: list[str] = []
        for text in texts:
            summaries.append(await self._llm_client.do_generate_raw(text, system_prompt=settings.summary_prompt))
        return summaries

    async def _summarize_extras(self, texts: list[str]) -> list[str]:
        if self._extras_client is None:
            raise RuntimeError("Summary source 'extras' requires EXTRAS_ENGINE to be configured.")
        summaries: list[str] = []
        for text in texts:
            try:
                summaries.append(await self._extras_client.do_summarize(text))
            except (ClientRequestError, ValueError) as e:
                self.logging.warning("Extras summary failed, keeping original text: %s", e)
                summaries.append(text)
        return summaries
