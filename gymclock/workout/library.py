"""Built-in workout templates for common studio sessions."""

from __future__ import annotations

from dataclasses import dataclass

from gymclock.workout.model import (
    Exercise,
    StartGroup,
    TimerMode,
    TimerSettings,
    Workout,
    WorkoutBlock,
)


@dataclass(frozen=True)
class WorkoutTemplateBlock:
    title: str
    mode: TimerMode
    work_time: int
    rest_time: int = 0
    rounds: int = 1
    exercises: tuple[str, ...] = ()
    auto_advance: bool = False
    transition_time: int = 0


@dataclass(frozen=True)
class WorkoutTemplate:
    key: str
    name: str
    category: str
    blocks: tuple[WorkoutTemplateBlock, ...]
    race_groups: tuple[tuple[str, tuple[str, ...]], ...] = ()


TEMPLATES: tuple[WorkoutTemplate, ...] = (
    WorkoutTemplate(
        key="tabata_classic",
        name="Tabata Classic",
        category="Tabata",
        blocks=(
            WorkoutTemplateBlock(
                "Tabata", "tabata", 20, 10, 8, ("Air Squats", "Push-ups")
            ),
        ),
    ),
    WorkoutTemplate(
        key="emom_10",
        name="EMOM 10",
        category="EMOM",
        blocks=(
            WorkoutTemplateBlock(
                "EMOM 10", "emom", 60, 0, 10, ("Kettlebell Swings", "Burpees")
            ),
        ),
    ),
    WorkoutTemplate(
        key="amrap_12",
        name="AMRAP 12",
        category="AMRAP",
        blocks=(
            WorkoutTemplateBlock(
                "AMRAP 12",
                "amrap",
                12 * 60,
                exercises=("Wall Balls", "Box Jumps", "Row 250 m"),
            ),
        ),
    ),
    WorkoutTemplate(
        key="intervals_30_15",
        name="Intervals 30/15",
        category="Interval",
        blocks=(
            WorkoutTemplateBlock(
                "30/15",
                "interval",
                30,
                15,
                12,
                ("Thrusters", "Pull-ups", "Sit-ups", "Lunges"),
            ),
        ),
    ),
    WorkoutTemplate(
        key="time_cap_20",
        name="Time Cap 20",
        category="Time Cap",
        blocks=(
            WorkoutTemplateBlock(
                "Time Cap 20",
                "time_cap",
                20 * 60,
                exercises=("Run 1 km", "50 Wall Balls", "Run 1 km"),
            ),
        ),
    ),
    WorkoutTemplate(
        key="circuit_chain",
        name="Circuit Chain",
        category="Chain",
        blocks=(
            WorkoutTemplateBlock(
                "Warm-up 40/20",
                "interval",
                40,
                20,
                4,
                ("Jumping Jacks", "Inchworms"),
                auto_advance=True,
                transition_time=30,
            ),
            WorkoutTemplateBlock(
                "EMOM 8",
                "emom",
                60,
                0,
                8,
                ("Deadlifts", "Push Press"),
                auto_advance=True,
                transition_time=60,
            ),
            WorkoutTemplateBlock(
                "AMRAP 10", "amrap", 10 * 60, exercises=("Burpees", "Row 200 m")
            ),
            WorkoutTemplateBlock("Stretch", "no_timer", 0),
        ),
    ),
    WorkoutTemplate(
        key="hyrox_race",
        name="HYROX Simulation",
        category="Race",
        blocks=(
            WorkoutTemplateBlock(
                "HYROX",
                "stopwatch",
                3 * 60 * 60,
                exercises=(
                    "Run 1 km",
                    "SkiErg 1000 m",
                    "Sled Push 50 m",
                    "Sled Pull 50 m",
                    "Burpee Broad Jumps 80 m",
                    "Row 1000 m",
                    "Farmers Carry 200 m",
                    "Sandbag Lunges 100 m",
                    "Wall Balls 100",
                ),
            ),
        ),
        race_groups=(
            ("Startgrupp 1", ("Anna", "Erik")),
            ("Startgrupp 2", ("Sara", "Johan")),
        ),
    ),
)


def list_templates() -> tuple[WorkoutTemplate, ...]:
    return TEMPLATES


def build_workout_from_template(template_key: str) -> Workout:
    template = next((item for item in TEMPLATES if item.key == template_key), None)
    if template is None:
        raise ValueError(f"Unknown workout template '{template_key}'")

    blocks: list[WorkoutBlock] = []
    for block in template.blocks:
        blocks.append(
            WorkoutBlock(
                title=block.title,
                tag=template.category,
                settings=TimerSettings(
                    mode=block.mode,
                    work_time=block.work_time,
                    rest_time=block.rest_time,
                    rounds=block.rounds,
                ),
                exercises=tuple(Exercise(name=name) for name in block.exercises),
                auto_advance=block.auto_advance,
                transition_time=block.transition_time,
            )
        )
    groups = tuple(
        StartGroup(id=f"group-{i + 1}", name=name, participants="\n".join(people))
        for i, (name, people) in enumerate(template.race_groups)
    )
    return Workout(title=template.name, blocks=tuple(blocks), start_groups=groups)
