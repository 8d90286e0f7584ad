"""
CLI commands for dialogue engine
"""

import json
import logging
from pathlib import Path

import click
from click.exceptions import Exit

from dialogue_engine.errors import AutoAdvanceBudgetExceeded, DialogueError
from dialogue_engine.export.exporter import EXPORT_FORMATS, DialogueExporter
from dialogue_engine.session import DEFAULT_AUTO_ADVANCE_BUDGET
from dialogue_engine.templates import build_template, list_templates
from dialogue_engine.tree.tree import DialogTree
from dialogue_engine.tree.validator import DialogueValidator

from .play_cmd import DialoguePlayer
from .validate_cmd import report_results


def load_tree(file_path: str) -> DialogTree:
    """Load a tree, turning load errors into a CLI failure"""
    try:
        return DialogTree.load_file(Path(file_path))
    except (DialogueError, OSError) as e:
        click.echo(f"\n❌ Error: {e}", err=True)
        raise Exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine decisions (condition failures, transitions)")
def cli(verbose):
    """Dialogue Engine - run and check branching dialogue trees"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--detailed", "-d", is_flag=True, help="Show detailed validation output")
def validate(file_path, detailed):
    """Validate a dialogue tree JSON file"""
    tree = load_tree(file_path)
    validator = DialogueValidator(tree)
    is_valid = validator.validate()

    report_results(validator, Path(file_path).name, detailed=detailed)

    if not is_valid:
        raise Exit(1)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True))
def stats(file_path):
    """Show statistics for a dialogue tree"""
    tree = load_tree(file_path)
    nodes = list(tree.nodes.values())
    choice_count = sum(len(node.choices) for node in nodes)

    click.echo(f"\n📊 Statistics for {Path(file_path).name}")
    click.echo("=" * 50)

    click.echo("\n📝 Content:")
    click.echo(f"  Nodes:          {len(nodes):>6}")
    click.echo(f"  Choices:        {choice_count:>6}")
    click.echo(f"  Once-choices:   {sum(1 for n in nodes for c in n.choices if c.once):>6}")
    click.echo(f"  Conditions:     {sum(len(n.conditions) + sum(len(c.conditions) for c in n.choices) for n in nodes):>6}")
    click.echo(f"  Effects:        {sum(len(n.effects) + sum(len(c.effects) for c in n.choices) for n in nodes):>6}")

    avg_choices = choice_count / len(nodes) if nodes else 0
    click.echo("\n📈 Averages:")
    click.echo(f"  Choices per node: {avg_choices:>6.1f}")

    branching_nodes = sum(1 for node in nodes if len(node.choices) > 1)
    linear_nodes = sum(1 for node in nodes if len(node.choices) == 1 or (not node.choices and node.next_node))
    auto_nodes = sum(1 for node in nodes if node.auto_advance)
    dead_ends = sum(1 for node in nodes if node.is_terminal())

    click.echo("\n🌳 Structure:")
    click.echo(f"  Branching nodes: {branching_nodes:>6}")
    click.echo(f"  Linear nodes:    {linear_nodes:>6}")
    click.echo(f"  Auto-advance:    {auto_nodes:>6}")
    click.echo(f"  Endings:         {dead_ends:>6}")
    click.echo()


@cli.command("show-node")
@click.argument("file_path", type=click.Path(exists=True))
@click.argument("node_id")
def show_node(file_path, node_id):
    """Display a specific node from a dialogue tree"""
    tree = load_tree(file_path)

    node = tree.get_node(node_id)
    if node is None:
        click.echo(f"❌ Node '{node_id}' not found in {Path(file_path).name}", err=True)
        click.echo("\nAvailable nodes:")
        for nid in sorted(tree.nodes)[:20]:
            click.echo(f"  • {nid}")
        if len(tree.nodes) > 20:
            click.echo(f"  ... and {len(tree.nodes) - 20} more")
        raise Exit(1)

    click.echo(f"\n📍 Node: [{node_id}]")
    click.echo("=" * 50)

    if node.conditions:
        click.echo("\n🔒 Conditions:")
        for condition in node.conditions:
            click.echo(f"  {json.dumps(condition) if not isinstance(condition, str) else condition}")

    if node.effects:
        click.echo("\n⚡ Effects:")
        for effect in node.effects:
            click.echo(f"  {json.dumps(effect) if not isinstance(effect, str) else effect}")

    click.echo("\n💬 Dialogue:")
    click.echo(f"  {node.speaker or 'narrator'}: \"{node.text}\"")

    if node.choices:
        click.echo("\n🔀 Choices:")
        for choice in node.choices:
            cond_str = f" {{{'; '.join(map(str, choice.conditions))}}}" if choice.conditions else ""
            effect_str = f" [{'; '.join(map(str, choice.effects))}]" if choice.effects else ""
            once_str = " (once)" if choice.once else ""
            click.echo(f"  -> {choice.goto or 'END'}: \"{choice.text}\"{cond_str}{effect_str}{once_str}")

    if node.next_node:
        mode = "auto" if node.auto_advance else "continue"
        click.echo(f"\n⏭  Next ({mode}): {node.next_node}")

    click.echo()


@cli.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--budget", default=DEFAULT_AUTO_ADVANCE_BUDGET, show_default=True, help="Max auto-advance hops per step")
@click.option("--show-nodes", is_flag=True, help="Show node ids while playing")
def play(file_path, budget, show_nodes):
    """Play through a dialogue tree interactively"""
    tree = load_tree(file_path)
    player = DialoguePlayer(tree, budget=budget, verbose=show_nodes)
    try:
        player.play()
    except AutoAdvanceBudgetExceeded:
        raise Exit(1)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), help="Output path (default: alongside input)")
@click.option("--format", "fmt", type=click.Choice(EXPORT_FORMATS), default="presentation", show_default=True)
def export(file_path, output, fmt):
    """Export a dialogue tree for a presentation layer or another tool"""
    tree = load_tree(file_path)
    source = Path(file_path)

    if output is None:
        suffix = ".csv" if fmt == "csv" else f".{fmt}.json"
        output_path = source.with_name(source.stem + suffix)
    else:
        output_path = Path(output)

    DialogueExporter().export(tree, output_path, fmt)

    click.echo(f"✅ Exported to: {output_path}")
    click.echo(f"   • {len(tree.nodes)} nodes")


@cli.command()
@click.argument("name", type=click.Choice(list_templates()))
@click.option("--output", "-o", type=click.Path(), help="Write the tree to this file instead of stdout")
@click.option("--tree-id", help="Id for the generated tree")
@click.option("--speaker", help="Speaker name to use on every node")
def template(name, output, tree_id, speaker):
    """Generate a starter tree from a built-in NPC template"""
    tree = build_template(name, tree_id=tree_id, speaker=speaker)
    if output:
        tree.save_file(Path(output))
        click.echo(f"✅ Wrote {name} template to: {output}")
    else:
        click.echo(tree.to_json())


if __name__ == "__main__":
    cli()
