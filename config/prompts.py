"""
Prompt Templates Module
-----------------------
Centralized prompt definitions for flashcard generation.

Design Principles:
1. Single source of truth for all prompts
2. The generation prompt fixes the output format so the reply can be split
   line by line without any model-specific cleanup
3. The review prompt returns free text that is shown to the user as-is
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PromptTemplate:
    """A prompt template with system and user components."""
    name: str
    description: str
    system_prompt: str
    user_prompt_template: str
    output_format: dict = field(default_factory=dict)

    def render(self, **kwargs) -> str:
        """Fill the user prompt template with the given values."""
        return self.user_prompt_template.format(**kwargs)


TUTOR_SYSTEM = "You are a helpful language tutor."

# Separators the parser relies on
FIELD_SEPARATOR = ";"
LINE_BREAK = "<br><br>"


# =============================================================================
# Card Generation Prompt
# =============================================================================

CARD_GENERATION_USER = """You are a language tutor creating flashcards for language learners.

Follow this setup:
- Source Language: {source_language}
- Target Language: {target_language}

Instructions:
1. For each word provided, translate it into the target language, respecting the form given (infinitive, conjugated, etc.). If ambiguous, default to the infinitive form.
2. If the word has multiple meanings, use the most common meaning unless specific context is provided.
3. On the front of the card, show:
   - The word (in its original source language)
   - An example sentence in the source language using the word naturally
4. On the back of the card, show:
   - The translation of the word into the target language
   - The translation of the example sentence into the target language

Formatting Rules (for Anki import):
- Use <br><br> to separate the word from the sentence within each field.
- Use a single ; character to separate front and back fields.
- Each flashcard must be on a single line.
- No extra blank lines between cards.
- Do not add any explanations or notes outside of the card format.

Example Output Format:
Sneezing.<br><br>She was sneezing so much the dog thought it was a game.;Espirrando.<br><br>Ela estava espirrando tanto que o cachorro achou que era brincadeira.

Here are the words to process:
{words}

Return only the generated cards in this format."""

GENERATION_PROMPT = PromptTemplate(
    name="card_generation",
    description="Translate words and write example sentences, one card per line",
    system_prompt=TUTOR_SYSTEM,
    user_prompt_template=CARD_GENERATION_USER,
    output_format={
        "line": "<word>.<br><br><sentence>;<translation>.<br><br><translated sentence>",
    },
)


# =============================================================================
# Input Review Prompt
# =============================================================================

INPUT_REVIEW_USER = """You are reviewing the word list a learner wants to turn into flashcards.

Setup:
- Source Language: {source_language}
- Target Language: {target_language}

Each line below is meant to become exactly one flashcard.

Supported line shapes:
- A single word in the source language (e.g. "run", "apple")
- A short phrase or collocation (e.g. "to take a walk", "good morning")
- A specific verb form the learner wants to keep (e.g. "ran", "was sneezing")
- A word followed by a short context hint in parentheses (e.g. "bank (river)")

Unsupported line shapes:
- Several unrelated words on one line (e.g. "cat, dog, bird")
- Full sentences or paragraphs
- Words written in the target language instead of the source language
- Lines containing the ; character
- Misspelled or non-existent words

For every line that does not match a supported shape, quote the line, explain the problem in one sentence, and suggest a corrected version. If every line is fine, say so in one sentence. Do not translate the words and do not create any flashcards.

Lines to review:
{lines}"""

REVIEW_PROMPT = PromptTemplate(
    name="input_review",
    description="Flag word-list lines that will not produce good cards",
    system_prompt=TUTOR_SYSTEM,
    user_prompt_template=INPUT_REVIEW_USER,
)
