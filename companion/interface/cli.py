"""
Command-line interface for the companion engine.

One-shot subcommands over PetManager, rendered with rich:

    companion species
    companion adopt USER SPECIES [--name NAME]
    companion pets USER
    companion status PET
    companion interact PET {feed,play,pet,train} [--food F] [--activity A] [--stat S]
    companion evolve PET [--item ITEM ...] [--check]
    companion history PET [--limit N]
    companion release PET
    companion config [--set KEY=VALUE ...]
"""

import argparse
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import EngineConfig, configure_logging, load_config, save_config
from ..errors import EvolutionError, PetEngineError
from ..state import PetManager, UserPet
from ..systems.mood import mood_info

console = Console()

THEME = {
    "primary": "steel_blue",
    "accent": "cyan",
    "warning": "dark_goldenrod",
    "danger": "dark_red",
    "dim": "dim",
}


def _bar(value: int, width: int = 20) -> str:
    filled = round(value / 100 * width)
    return "█" * filled + "░" * (width - filled)


def render_pet(manager: PetManager, pet_id: str) -> Panel:
    """Status panel: vitals, stats, level and bond progress."""
    status = manager.get_status(pet_id)
    pet: UserPet = status["pet"]
    mood = status["mood"]
    progress = status["progress"]

    lines = [
        f"[bold]{pet.display_name}[/bold]  [dim]{status['species_name']} · stage "
        f"{pet.current_evolution_stage}/{status['max_stage']}[/dim]",
        f"{mood['emoji']} {pet.mood.value} - {mood['description']}",
        "",
    ]
    for name, value in pet.vitals().items():
        lines.append(f"{name:<10} {_bar(value)} {value:>3}")

    lines.append("")
    lines.append(
        f"Level {progress['level']}  "
        f"({progress['xp_into_level']}/{progress['xp_for_level']} XP)"
    )
    to_bond = status["interactions_to_next_bond"]
    bond_note = "max" if to_bond is None else f"{to_bond} interactions to next"
    lines.append(f"Bond {pet.bond_level}  ({bond_note})")

    stats = ", ".join(f"{k} {v:g}" for k, v in pet.stats.model_dump().items())
    lines.append(f"[dim]{stats}[/dim]")
    if pet.personality_traits:
        lines.append(f"[dim]traits: {', '.join(pet.personality_traits)}[/dim]")
    if pet.active_title:
        lines.append(f"[{THEME['accent']}]{pet.active_title}[/{THEME['accent']}]")

    return Panel(
        "\n".join(lines),
        title=f"[{THEME['primary']}]{pet.id}[/{THEME['primary']}]",
        border_style=mood["color"],
    )


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def cmd_species(manager: PetManager, args: argparse.Namespace):
    """List adoptable species."""
    species = manager.list_available_species()
    if not species:
        console.print("[dim]No species available[/dim]")
        return

    table = Table(title="Species")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Rarity")
    table.add_column("Element")
    table.add_column("Stages")

    for s in species:
        table.add_row(s.id, s.display_name, s.rarity.value, s.element or "-", str(s.max_stage))

    console.print(table)


def cmd_adopt(manager: PetManager, args: argparse.Namespace):
    """Adopt a pet."""
    pet = manager.adopt(args.user, args.species, args.name)
    console.print(f"[green]Adopted:[/green] {pet.display_name} ({pet.id})")
    console.print(render_pet(manager, pet.id))


def cmd_pets(manager: PetManager, args: argparse.Namespace):
    """List a user's pets."""
    pets = manager.get_user_pets(args.user)
    if not pets:
        console.print("[dim]No pets[/dim]")
        return

    table = Table(title=f"Pets of {args.user}")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Species")
    table.add_column("Level")
    table.add_column("Mood")
    table.add_column("★")

    for p in pets:
        table.add_row(
            p.id,
            p.display_name,
            p.species_id,
            str(p.level),
            f"{mood_info(p.mood)['emoji']} {p.mood.value}",
            "★" if p.is_favorite else "",
        )

    console.print(table)


def cmd_status(manager: PetManager, args: argparse.Namespace):
    """Show a pet."""
    console.print(render_pet(manager, args.pet))


def cmd_interact(manager: PetManager, args: argparse.Namespace):
    """Feed, play with, pet or train a pet."""
    params = {}
    if args.food:
        params["food_type"] = args.food
    if args.activity:
        params["activity_type"] = args.activity
    if args.stat:
        params["stat"] = args.stat

    outcome = manager.resolve_interaction(args.pet, args.type, params)
    result = outcome.result

    if result.refused:
        console.print(f"[{THEME['warning']}]Refused:[/{THEME['warning']}] {result.reason}")
    else:
        changes = ", ".join(f"{k} {v:+g}" for k, v in result.stat_changes.items())
        console.print(f"[green]{result.interaction_type.value}[/green] {changes}")
        if result.rewards.xp or result.rewards.coins:
            console.print(f"[dim]+{result.rewards.xp} XP, +{result.rewards.coins} coins[/dim]")

    if outcome.leveled_up:
        console.print(f"[{THEME['accent']}]Level up! Now level {outcome.pet.level}[/{THEME['accent']}]")
    if outcome.bond_increased:
        console.print(f"[{THEME['accent']}]Bond deepened to {outcome.pet.bond_level}[/{THEME['accent']}]")
    if outcome.mood_before != outcome.mood_after:
        console.print(f"Mood: {outcome.mood_before.value} → {outcome.mood_after.value}")


def cmd_evolve(manager: PetManager, args: argparse.Namespace):
    """Check or perform evolution."""
    items = args.item or []
    if args.check:
        check = manager.check_evolution(args.pet, items)
        if check.max_stage_reached:
            console.print("[dim]Already at final form[/dim]")
        elif check.can_evolve:
            console.print(f"[green]Ready to become {check.next_stage.stage_name}[/green]")
        else:
            console.print(f"[{THEME['warning']}]Not yet:[/{THEME['warning']}]")
            for req in check.missing_requirements:
                console.print(f"  • {req}")
        return

    pet = manager.evolve(args.pet, items)
    console.print(f"[green]Evolved![/green] {pet.titles_earned[-1]}")
    console.print(render_pet(manager, pet.id))


def cmd_history(manager: PetManager, args: argparse.Namespace):
    """Show the interaction log."""
    records = manager.get_interaction_history(args.pet, limit=args.limit)
    if not records:
        console.print("[dim]No interactions yet[/dim]")
        return

    table = Table(title=f"History of {args.pet}")
    table.add_column("When", style="dim")
    table.add_column("Type")
    table.add_column("Changes")
    table.add_column("XP")

    for r in records:
        changes = ", ".join(f"{k} {v:+g}" for k, v in r.stat_changes.items())
        if r.details.get("refused"):
            changes = f"[{THEME['warning']}]refused[/{THEME['warning']}] {changes}"
        table.add_row(
            r.created_at.strftime("%Y-%m-%d %H:%M"),
            r.interaction_type.value,
            changes or "-",
            str(r.rewards.get("xp", "")),
        )

    console.print(table)


def cmd_release(manager: PetManager, args: argparse.Namespace):
    """Release a pet."""
    pet = manager.release(args.pet)
    console.print(f"[dim]{pet.display_name} was released. Goodbye![/dim]")


COMMANDS = {
    "species": cmd_species,
    "adopt": cmd_adopt,
    "pets": cmd_pets,
    "status": cmd_status,
    "interact": cmd_interact,
    "evolve": cmd_evolve,
    "history": cmd_history,
    "release": cmd_release,
}


def cmd_config(config: EngineConfig, data_dir: str, args) -> int:
    """Show effective settings, or persist KEY=VALUE changes to the data dir."""
    if args.set:
        saved = load_config(data_dir, use_env=False)
        for pair in args.set:
            key, sep, value = pair.partition("=")
            if not sep or key not in EngineConfig.__annotations__:
                console.print(f"[{THEME['danger']}]Unknown setting: {pair}[/{THEME['danger']}]")
                return 1
            saved[key] = value
            config[key] = value
        if not save_config(saved, data_dir):
            console.print(f"[{THEME['danger']}]Could not write config in {data_dir}[/{THEME['danger']}]")
            return 1
        console.print(f"Saved {len(args.set)} setting(s) to {data_dir}")

    table = Table(title="Configuration", border_style=THEME["primary"])
    table.add_column("Setting", style=THEME["accent"])
    table.add_column("Value")
    for key, value in config.items():
        table.add_row(key, str(value))
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="companion", description="Companion pet simulator")
    parser.add_argument("--data-dir", default=None, help="Directory for pet files")
    parser.add_argument("--catalog", default=None, help="YAML species catalog")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING...")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("species", help="List adoptable species")

    p = sub.add_parser("adopt", help="Adopt a pet")
    p.add_argument("user")
    p.add_argument("species")
    p.add_argument("--name", default=None)

    p = sub.add_parser("pets", help="List a user's pets")
    p.add_argument("user")

    p = sub.add_parser("status", help="Show a pet")
    p.add_argument("pet")

    p = sub.add_parser("interact", help="Feed, play, pet or train")
    p.add_argument("pet")
    p.add_argument("type", choices=["feed", "play", "pet", "train"])
    p.add_argument("--food", default=None)
    p.add_argument("--activity", default=None)
    p.add_argument("--stat", default=None)

    p = sub.add_parser("evolve", help="Evolve a pet")
    p.add_argument("pet")
    p.add_argument("--item", action="append", help="Held item (repeatable)")
    p.add_argument("--check", action="store_true", help="Only show what's missing")

    p = sub.add_parser("history", help="Show interaction history")
    p.add_argument("pet")
    p.add_argument("--limit", type=int, default=20)

    p = sub.add_parser("release", help="Release a pet")
    p.add_argument("pet")

    p = sub.add_parser("config", help="Show or change settings")
    p.add_argument("--set", action="append", metavar="KEY=VALUE", help="Persist a setting (repeatable)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    data_dir = args.data_dir or "data"
    config = load_config(data_dir)
    if args.data_dir:
        config["data_dir"] = args.data_dir
    if args.catalog:
        config["catalog_path"] = args.catalog
    configure_logging(args.log_level or config["log_level"])

    if args.command == "config":
        return cmd_config(config, data_dir, args)

    manager = PetManager(store=config["data_dir"], catalog=config["catalog_path"])

    try:
        COMMANDS[args.command](manager, args)
    except EvolutionError as e:
        console.print(f"[{THEME['danger']}]{e}[/{THEME['danger']}]")
        for req in e.missing_requirements:
            console.print(f"  • {req}")
        return 1
    except PetEngineError as e:
        console.print(f"[{THEME['danger']}]{e}[/{THEME['danger']}]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
