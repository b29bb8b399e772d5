"""Damage, defense and evasion resolution.

Pure functions over stats and rolls; nothing here touches a session.
"""

from __future__ import annotations

from duelarena.battle.entropy import EntropySource, checked_roll
from duelarena.battle.models import (
    BASE_DAMAGE_ROLL,
    DEFENSE_REDUCTION_PERCENT,
    HEAL_AMOUNT,
    HEAVY_MISS_CHANCE,
    INITIAL_HEALTH,
    PERCENT_ROLL,
    AttackOutcome,
    BattleAction,
    Side,
)
from duelarena.registry.characters import CharacterStats


def choose_first_side(speed_a: int, speed_b: int) -> Side:
    """The faster fighter acts first; ties go to fighter A."""
    return Side.A if speed_a >= speed_b else Side.B


def base_damage(attacker: CharacterStats, defender: CharacterStats, roll: int) -> int:
    return max(1, attacker.attack + roll - defender.defense)


def shielded(damage: int) -> int:
    return damage * (100 - DEFENSE_REDUCTION_PERCENT) // 100


def apply_heal(health: int) -> int:
    return min(INITIAL_HEALTH, health + HEAL_AMOUNT)


def resolve_attack(
    attacker: CharacterStats,
    defender: CharacterStats,
    action: BattleAction,
    *,
    defender_shielded: bool,
    entropy: EntropySource,
) -> AttackOutcome:
    """Resolve one Standard or Heavy attack.

    Rolls are drawn in a fixed order: base damage variance, then the
    crit (Standard) or miss (Heavy) roll, then evasion. Evasion is always
    rolled. The returned damage is not yet clamped to the defender's health.
    """

    if not action.is_attack:
        raise ValueError(f"{action.value} is not an attack action")

    damage = base_damage(attacker, defender, checked_roll(entropy, BASE_DAMAGE_ROLL))
    critical = False
    missed = False

    modifier_roll = checked_roll(entropy, PERCENT_ROLL)
    if action is BattleAction.STANDARD:
        if modifier_roll < attacker.crit_chance:
            critical = True
            damage *= 2
    elif modifier_roll < HEAVY_MISS_CHANCE:
        missed = True
        damage = 0
    else:
        damage *= 2

    evaded = checked_roll(entropy, PERCENT_ROLL) < defender.evasion
    if evaded:
        damage = 0

    if defender_shielded:
        damage = shielded(damage)

    return AttackOutcome(
        damage=damage,
        critical=critical and not evaded,
        missed=missed,
        evaded=evaded,
        shield_consumed=defender_shielded,
    )
