"""
Command Line Interface
--------------------
Provides a command-line interface for the flashcard generator.
"""

import asyncio
import base64
import logging
import logging.config
import sys
import time
from pathlib import Path

import click

from config.settings import DEFAULT_LLM_PROVIDER, LOGGING_CONFIG, PORT
from utils.pipeline import CardGenerationPipeline, PipelineError

# Configure logging
logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger(__name__)

LLM_CHOICE = click.Choice(["openai", "anthropic"])


def language_options(func):
    """Attach the shared --source/--target options to a command."""
    func = click.option(
        "--target", "-t", required=True, help="Language to translate into"
    )(func)
    func = click.option(
        "--source", "-s", default="English", show_default=True, help="Language of the input words"
    )(func)
    return func


@click.group()
def cli():
    """
    Quick Cards - Create Anki flashcards with audio from word lists.
    """
    pass


@cli.command()
@click.argument("words_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--deck", "-d", required=True, help="Name of the deck to create")
@language_options
@click.option("--reversed", "include_reversed", is_flag=True, help="Also create a reversed deck")
@click.option(
    "--output-dir", "-o", type=click.Path(file_okay=False), default=".", help="Where to save .apkg files"
)
@click.option("--llm", type=LLM_CHOICE, default=DEFAULT_LLM_PROVIDER, help="LLM provider to use")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def generate(words_file, deck, source, target, include_reversed, output_dir, llm, verbose):
    """
    Generate Anki decks from a file with one word or phrase per line.

    WORDS_FILE: Path to the word list
    """
    # Set the log level based on verbose flag
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.INFO)

    start_time = time.time()
    words = Path(words_file).read_text(encoding="utf-8")

    try:
        pipeline = CardGenerationPipeline.from_settings(llm_provider=llm)
        result = asyncio.run(
            pipeline.generate(deck, words, source, target, include_reversed=include_reversed)
        )
    except PipelineError as e:
        logger.exception("Error running pipeline")
        message = f"❌ Error: {e}"
        if e.code:
            message += f" [{e.code}]"
        click.echo(click.style(message, fg="red"))
        sys.exit(1)

    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)
    for apkg in result.decks:
        (output / apkg.name).write_bytes(base64.b64decode(apkg.content))
        click.echo(f"Deck saved to: {output / apkg.name}")

    elapsed_time = time.time() - start_time
    click.echo(
        click.style(f"✅ {result.message} in {elapsed_time:.2f} seconds", fg="green")
    )


@cli.command()
@click.argument("text")
@language_options
@click.option("--llm", type=LLM_CHOICE, default=DEFAULT_LLM_PROVIDER, help="LLM provider to use")
def preview(text, source, target, llm):
    """
    Show the card the first line of TEXT would produce.
    """
    try:
        pipeline = CardGenerationPipeline.from_settings(llm_provider=llm)
        card = asyncio.run(pipeline.preview(text, source, target))
    except PipelineError as e:
        click.echo(click.style(f"❌ Error: {e}", fg="red"))
        sys.exit(1)

    if card is None:
        click.echo(click.style("No card could be parsed from the model reply", fg="yellow"))
        return
    click.echo(f"Front: {card.front}")
    click.echo(f"Back:  {card.back}")


@cli.command()
@click.argument("words_file", type=click.Path(exists=True, dir_okay=False))
@language_options
@click.option("--llm", type=LLM_CHOICE, default=DEFAULT_LLM_PROVIDER, help="LLM provider to use")
def review(words_file, source, target, llm):
    """
    Ask the model which lines of WORDS_FILE need fixing.
    """
    text = Path(words_file).read_text(encoding="utf-8")
    try:
        pipeline = CardGenerationPipeline.from_settings(llm_provider=llm)
        feedback = asyncio.run(pipeline.review(text, source, target))
    except PipelineError as e:
        click.echo(click.style(f"❌ Error: {e}", fg="red"))
        sys.exit(1)

    click.echo(feedback)


@cli.command()
@click.option("--llm", type=LLM_CHOICE, default=DEFAULT_LLM_PROVIDER, help="LLM provider to check")
def check_api(llm):
    """
    Check if the API keys are configured correctly.
    """
    from modules.llm_interface import LLMInterface
    from modules.speech_synthesis import AzureTTSClient

    failed = False
    try:
        llm_interface = LLMInterface(provider=llm)

        # Simple test prompt
        response = asyncio.run(
            llm_interface.complete(
                "Respond with the text 'API is working correctly' if you can read this.",
                system_prompt="You are a test assistant.",
            )
        )

        if "API is working correctly" in response:
            click.echo(
                click.style(f"✅ {llm.upper()} API is configured correctly", fg="green")
            )
        else:
            click.echo(
                click.style(
                    f"❌ {llm.upper()} API test failed: Unexpected response", fg="red"
                )
            )
            failed = True

    except Exception as e:
        click.echo(click.style(f"❌ {llm.upper()} API test failed: {str(e)}", fg="red"))
        failed = True

    if asyncio.run(AzureTTSClient().is_available()):
        click.echo(click.style("✅ Azure TTS is configured correctly", fg="green"))
    else:
        click.echo(click.style("❌ Azure TTS test failed", fg="red"))
        failed = True

    if failed:
        sys.exit(1)


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind")
@click.option("--port", default=PORT, show_default=True, type=int, help="Port to listen on")
def serve(host, port):
    """
    Run the HTTP API.
    """
    import uvicorn

    uvicorn.run("backend.main:app", host=host, port=port)


if __name__ == "__main__":
    cli()
