"""
Catalogue statique des succès.

Chaque définition compare un compteur de ``AchievementProgress`` (``progress_key``)
à un seuil (``requirement``). Les identifiants sont stables: ils sont stockés
dans ``user_achievements.achievement_id``.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class AchievementRule:
    id: str
    name: str
    icon: str
    description: str
    requirement: int
    reward: int
    progress_key: str

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["progressKey"] = data.pop("progress_key")
        return data


ACHIEVEMENT_TIERS: Dict[str, Tuple[AchievementRule, ...]] = {
    "xpMilestones": (
        AchievementRule("bronze_learner", "Bronze Learner", "🥉", "Earn 1,000 XP", 1000, 50, "totalXp"),
        AchievementRule("silver_learner", "Silver Learner", "🥈", "Earn 5,000 XP", 5000, 100, "totalXp"),
        AchievementRule("gold_learner", "Gold Learner", "🥇", "Earn 10,000 XP", 10000, 200, "totalXp"),
        AchievementRule("platinum_learner", "Platinum Learner", "💎", "Earn 25,000 XP", 25000, 500, "totalXp"),
        AchievementRule("legendary_learner", "Legendary Learner", "👑", "Earn 50,000 XP", 50000, 1000, "totalXp"),
    ),
    "streakMilestones": (
        AchievementRule("week_warrior", "Week Warrior", "🔥", "7-day streak", 7, 50, "longestStreak"),
        AchievementRule("fortnight_fighter", "Fortnight Fighter", "🌟", "14-day streak", 14, 100, "longestStreak"),
        AchievementRule("monthly_master", "Monthly Master", "⭐", "30-day streak", 30, 200, "longestStreak"),
        AchievementRule("streak_legend", "Streak Legend", "💫", "100-day streak", 100, 1000, "longestStreak"),
    ),
    "lessonMilestones": (
        AchievementRule("beginner", "Beginner", "📚", "Complete 10 lessons", 10, 50, "lessonsCompleted"),
        AchievementRule("student", "Student", "📖", "Complete 50 lessons", 50, 100, "lessonsCompleted"),
        AchievementRule("scholar", "Scholar", "🎓", "Complete 100 lessons", 100, 200, "lessonsCompleted"),
        AchievementRule("professor", "Professor", "👨‍🏫", "Complete 250 lessons", 250, 500, "lessonsCompleted"),
    ),
    "vocabularyMilestones": (
        AchievementRule("word_collector", "Word Collector", "📝", "Learn 100 words", 100, 50, "wordsLearned"),
        AchievementRule("vocabulary_builder", "Vocabulary Builder", "📚", "Learn 500 words", 500, 100, "wordsLearned"),
        AchievementRule("word_master", "Word Master", "🗣️", "Learn 1,000 words", 1000, 200, "wordsLearned"),
        AchievementRule("polyglot", "Polyglot", "🌍", "Learn 2,500 words", 2500, 500, "wordsLearned"),
    ),
    "levelMilestones": (
        AchievementRule("level_5", "Level 5", "5️⃣", "Reach Level 5", 5, 50, "currentLevel"),
        AchievementRule("level_10", "Level 10", "🔟", "Reach Level 10", 10, 100, "currentLevel"),
        AchievementRule("level_25", "Level 25", "🌟", "Reach Level 25", 25, 250, "currentLevel"),
        AchievementRule("level_50", "Level 50", "👑", "Reach Level 50", 50, 500, "currentLevel"),
    ),
    "perfectScores": (
        AchievementRule("first_perfect", "First Perfect", "✨", "Get 100% on a quiz", 1, 25, "perfectScores"),
        AchievementRule("perfectionist", "Perfectionist", "💯", "Get 100% on 10 quizzes", 10, 100, "perfectScores"),
        AchievementRule("flawless", "Flawless", "🏆", "Get 100% on 50 quizzes", 50, 500, "perfectScores"),
    ),
}

ALL_ACHIEVEMENTS: Tuple[AchievementRule, ...] = tuple(
    rule for tier in ACHIEVEMENT_TIERS.values() for rule in tier
)

ACHIEVEMENTS_BY_ID: Dict[str, AchievementRule] = {rule.id: rule for rule in ALL_ACHIEVEMENTS}


def get_rule(achievement_id: str) -> Optional[AchievementRule]:
    return ACHIEVEMENTS_BY_ID.get(achievement_id)


def crossed_rules(counters: Dict[str, int], already_unlocked: set[str]) -> List[AchievementRule]:
    """Définitions atteintes et pas encore débloquées, dans l'ordre du catalogue."""
    return [
        rule
        for rule in ALL_ACHIEVEMENTS
        if rule.id not in already_unlocked and counters.get(rule.progress_key, 0) >= rule.requirement
    ]
