"""
pixel_evolution/cli.py - Command-line interface
"""
import logging
import os
import random
import time

import click

from .ast_nodes import node_from_json
from .evaluator import Evaluator
from .exceptions import PixelEvolutionError
from .generator import DEFAULT_MAX_DEPTH, DEFAULT_MIN_DEPTH
from .parameters import Parameters
from .population import ParameterPool, DEFAULT_CAPACITY, BREED_CHANCE


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')


@click.group()
def cli():
    """Pixel Evolution - vote-driven random expression images"""
    pass


@cli.command()
@click.option('--width', default=256, help='Image width in pixels')
@click.option('--height', default=256, help='Image height in pixels')
@click.option('--scale', default=1, help='Upscale factor per pixel')
@click.option('--max-depth', default=DEFAULT_MAX_DEPTH, help='Maximum tree depth')
@click.option('--min-depth', default=DEFAULT_MIN_DEPTH, help='Minimum tree depth')
@click.option('--params', 'params_file', type=click.Path(exists=True, dir_okay=False),
              help='Parameters JSON file (default weights otherwise)')
@click.option('--no-bitwise', is_flag=True, help='Disable bitwise operators')
@click.option('--seed', type=int, help='Random seed')
@click.option('--out', '-o', default=None, help='Output PNG filename')
@click.option('--save-expr', default=None, help='Also write the expression as JSON')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def generate(width, height, scale, max_depth, min_depth, params_file, no_bitwise, seed,
             out, save_expr, verbose):
    """Generate and render one random expression"""
    _setup_logging(verbose)

    if seed is None:
        seed = random.randrange(1 << 32)
    rng = random.Random(seed)

    try:
        if params_file:
            params = Parameters.from_json(filename=params_file)
        else:
            params = Parameters.default(include_bitwise=not no_bitwise)
        expr = params.generate_expression(max_depth, min_depth, rng)
    except (PixelEvolutionError, ValueError, OSError) as e:
        raise click.ClickException(str(e))

    out = out or f"{seed}.png"
    start_time = time.time()
    Evaluator().render_image(expr, width, height, scale, filename=out)

    click.echo(f"Seed: {seed}")
    click.echo(f"Expr: {expr}")
    click.echo(f"Image saved: {out}")
    if verbose:
        click.echo(f"Depth: {expr.get_depth()}, Nodes: {len(expr.get_all_nodes())}, "
                   f"Render time: {time.time() - start_time:.2f}s")

    if save_expr:
        with open(save_expr, 'w') as f:
            f.write(expr.to_json())
        click.echo(f"Expression saved: {save_expr}")


@cli.command()
@click.option('--expr', '-e', 'expr_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Path to expression JSON file')
@click.option('--width', default=256, help='Image width in pixels')
@click.option('--height', default=256, help='Image height in pixels')
@click.option('--scale', default=1, help='Upscale factor per pixel')
@click.option('--out', '-o', help='Output filename (optional)')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def render(expr_file, width, height, scale, out, verbose):
    """Render an expression from a JSON file"""
    _setup_logging(verbose)

    try:
        with open(expr_file, 'r') as f:
            expr = node_from_json(f.read())
        click.echo(f"Loaded expression: {expr_file}")
    except (PixelEvolutionError, ValueError, TypeError, KeyError, OSError) as e:
        raise click.ClickException(f"Error loading expression: {e}")

    if verbose:
        click.echo(f"Expr: {expr}")

    if not out:
        base_name = os.path.splitext(os.path.basename(expr_file))[0]
        out = f"{base_name}.png"

    Evaluator().render_image(expr, width, height, scale, filename=out)
    click.echo(f"Image saved: {out}")


@cli.command()
@click.option('--rounds', '-r', default=20, help='Number of images to vote on')
@click.option('--capacity', default=DEFAULT_CAPACITY, help='Maximum pool size')
@click.option('--breed-chance', default=BREED_CHANCE, help='Chance that a vote breeds a new entry')
@click.option('--width', default=128, help='Image width in pixels')
@click.option('--height', default=128, help='Image height in pixels')
@click.option('--scale', default=2, help='Upscale factor per pixel')
@click.option('--max-depth', default=DEFAULT_MAX_DEPTH, help='Maximum tree depth')
@click.option('--min-depth', default=DEFAULT_MIN_DEPTH, help='Minimum tree depth')
@click.option('--seed', type=int, help='Random seed')
@click.option('--out', '-o', default='out/', help='Output directory')
@click.option('--save-best', default=None, help='Write the best Parameters as JSON at the end')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def vote(rounds, capacity, breed_chance, width, height, scale, max_depth, min_depth, seed,
         out, save_best, verbose):
    """Interactive session: rate images to evolve the generator"""
    _setup_logging(verbose)
    os.makedirs(out, exist_ok=True)

    rng = random.Random(seed)
    try:
        pool = ParameterPool(capacity=capacity, breed_chance=breed_chance,
                             max_depth=max_depth, min_depth=min_depth, rng=rng)
    except ValueError as e:
        raise click.ClickException(str(e))
    evaluator = Evaluator()

    for i in range(rounds):
        identifier, expr = pool.select_for_generation()
        filename = os.path.join(out, f"round_{i + 1:04d}.png")
        evaluator.render_image(expr, width, height, scale, filename=filename)

        click.echo(f"[{i + 1}/{rounds}] {filename} (parameters #{identifier})")
        if verbose:
            click.echo(f"  Expr: {expr}")
        approved = click.confirm('Do you like it?', default=True)
        pool.record_vote(identifier, approved)

    stats = pool.get_stats()
    score = stats['score']
    click.echo(f"\nPool: {stats['population_size']} entries, {stats['generation']} bred, "
               f"{stats['votes']} votes counted")
    click.echo(f"Score: best={score['max']:.3f} mean={score['mean']:.3f} worst={score['min']:.3f}")

    if save_best:
        best = max(pool.entries, key=lambda e: e.score)
        best.parameters.to_json(save_best)
        click.echo(f"Best parameters (#{best.identifier}) saved: {save_best}")


if __name__ == '__main__':
    cli()
