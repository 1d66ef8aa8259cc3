"""Entry point when the package is executed as a module."""

import json
import sys

import click

from llm_helm.backends.litellm import LiteLlmBackend
from llm_helm.exceptions import HelmError, SchemaValidationError
from llm_helm.helm import Helm
from llm_helm.messages import StructuredResponse
from llm_helm.observability import configure_logging, get_logger
from llm_helm.settings import HelmSettings

logger = get_logger(__name__)


@click.command()
@click.argument("prompt")
@click.option("--system", "system_prompt", default=None, help="System instruction.")
@click.option("--model", default=None, help="Model identifier (overrides HELM_MODEL).")
@click.option(
    "--schema",
    "schema_file",
    type=click.File("r"),
    default=None,
    help="JSON schema file the answer must match.",
)
@click.option("--retries", type=click.IntRange(min=0), default=None)
@click.option("--repair", type=click.IntRange(min=0), default=None)
@click.option("--temperature", type=float, default=None)
@click.option("--api-base", default=None, help="Base URL, e.g. a LiteLLM proxy.")
@click.option("--log-level", default=None)
@click.option("--console-logs", is_flag=True, help="Human-readable logs instead of JSON.")
def main(
    prompt,
    system_prompt=None,
    model=None,
    schema_file=None,
    retries=None,
    repair=None,
    temperature=None,
    api_base=None,
    log_level=None,
    console_logs=False,
):
    overrides = {
        "model": model,
        "retries": retries,
        "repair": repair,
        "temperature": temperature,
        "log_level": log_level,
    }
    settings = HelmSettings(**{k: v for k, v in overrides.items() if v is not None})
    configure_logging(settings, console=console_logs)

    chat = Helm(LiteLlmBackend(api_base=api_base), settings=settings).chat()
    if system_prompt:
        chat.system(system_prompt)
    chat.user(prompt)
    if schema_file is not None:
        chat.json_schema(json.load(schema_file))

    try:
        response = chat.send()
    except SchemaValidationError as e:
        logger.error("structured_output_failed", errors=e.validation_errors)
        click.echo(e.raw_output, err=True)
        raise click.ClickException(str(e)) from e
    except HelmError as e:
        raise click.ClickException(str(e)) from e

    if isinstance(response, StructuredResponse):
        click.echo(json.dumps(response.structured, indent=2))
    else:
        click.echo(response.content)


if __name__ == "__main__":
    sys.exit(main())
