"""Goal sources."""

from analysis_stream.goals.source import HttpGoalSource, load_goals_file, parse_generated_goals

__all__ = ["HttpGoalSource", "load_goals_file", "parse_generated_goals"]
