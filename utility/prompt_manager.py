from typing import List, Dict


class PromptManager:
    """
    Stateless builder for translation prompts.
    Request fields are interpolated as-is; nothing is escaped or validated here.
    """

    TRANSLATION_TEMPLATE = (
        'Translate the following text from {source_lang} to {target_lang} '
        'with a {tone} tone: "{text}"'
    )

    # --------------------------------------------------
    # Prompt construction
    # --------------------------------------------------
    @classmethod
    def build_translation_prompt(cls, text: str, source_lang: str, target_lang: str, tone: str) -> str:
        return cls.TRANSLATION_TEMPLATE.format(
            source_lang=source_lang,
            target_lang=target_lang,
            tone=tone,
            text=text,
        )

    @classmethod
    def build_chat_messages(cls, text: str, source_lang: str, target_lang: str, tone: str) -> List[Dict[str, str]]:
        """The instruction is the only message; there is no system prompt."""
        prompt = cls.build_translation_prompt(text, source_lang, target_lang, tone)
        return [{"role": "user", "content": prompt}]
