import json

import click

from .cli_utils import configure_logging, reconstruct_command_line
from .pipeline import ClassNamingPolicy, EnumPlacement, GeneratorConfig, ThingModelGenerationError, ThingModelGenerator


@click.command()
@click.option("--package", "-p", default=None, type=str, help="Root package of the generated code, e.g. com.example.lamp")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--enum-placement", default=None, type=click.Choice([p.value for p in EnumPlacement]))
@click.option("--naming-policy", default=None, type=click.Choice([p.value for p in ClassNamingPolicy]))
@click.option("--dsl/--no-dsl", default=None, help="Emit builder functions for generated classes")
@click.option("--suspend-dsl", is_flag=True, default=False, help="Emit async builders and async action methods")
@click.option(
    "--lenient-references",
    is_flag=True,
    default=False,
    help="Warn about and skip tm:ref pointers that do not resolve instead of failing",
)
@click.option("--verbose", "-v", is_flag=True, default=False)
@click.argument("model_url", type=str)
@click.argument("output_dir", type=click.Path(file_okay=False, resolve_path=True))
def wot_to_code(package, config, enum_placement, naming_policy, dsl, suspend_dsl, lenient_references, verbose, model_url, output_dir):
    """Generate a Python object model from the Thing Model at MODEL_URL into OUTPUT_DIR."""
    configure_logging(verbose)

    if config is not None:
        with open(config, encoding="utf-8") as f:
            try:
                config = GeneratorConfig.from_dict(json.load(f))
            except (json.JSONDecodeError, ValueError) as e:
                raise click.ClickException(f"Invalid config file: {e}") from e
    else:
        config = GeneratorConfig()

    # Command line values override the config file
    config.model_url = model_url
    config.output_dir = output_dir
    if package is not None:
        config.output_package = package
    if enum_placement is not None:
        config.enum_placement = EnumPlacement(enum_placement)
    if naming_policy is not None:
        config.naming_policy = ClassNamingPolicy(naming_policy)
    if dsl is not None:
        config.generate_dsl = dsl
    if suspend_dsl:
        config.suspend_dsl = True
    if lenient_references:
        config.strict_references = False

    generator = ThingModelGenerator(config, command_line=reconstruct_command_line(wot_to_code))
    try:
        result = generator.generate()
    except ThingModelGenerationError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Generated {len(result.written_files)} files for {result.model_name} in {output_dir}")
