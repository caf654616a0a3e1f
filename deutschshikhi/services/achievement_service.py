from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from sqlalchemy.orm import Session

from deutschshikhi.core.errors import AlreadyClaimedError, InvalidInputError, NotUnlockedError
from deutschshikhi.crud.user_crud import update_user_state
from deutschshikhi.gamification.achievement_rules import (
    ACHIEVEMENT_TIERS,
    ALL_ACHIEVEMENTS,
    AchievementRule,
    crossed_rules,
    get_rule,
)
from deutschshikhi.gamification.state import (
    PROGRESS_KEYS,
    AchievementProgress,
    XPState,
    read_achievement_progress,
    write_state,
)
from deutschshikhi.models.user.achievement_model import UserAchievement
from deutschshikhi.models.user.user_model import User

logger = logging.getLogger(__name__)


def list_catalogue() -> List[Dict[str, Any]]:
    """Toutes les définitions, à plat, dans l'ordre des paliers."""
    return [rule.as_dict() for rule in ALL_ACHIEVEMENTS]


def list_catalogue_by_tier() -> Dict[str, List[Dict[str, Any]]]:
    return {tier: [rule.as_dict() for rule in rules] for tier, rules in ACHIEVEMENT_TIERS.items()}


def serialize_unlocked(entry: UserAchievement) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": entry.achievement_id,
        "unlockedAt": entry.unlocked_at,
        "claimed": bool(entry.claimed),
        "claimedAt": entry.claimed_at,
        "reward": entry.reward,
    }
    rule = get_rule(entry.achievement_id)
    if rule is not None:
        payload.update(name=rule.name, icon=rule.icon, description=rule.description)
    return payload


def unlock_crossed(
    db: Session,
    user: User,
    progress: AchievementProgress,
    now: datetime,
) -> List[Dict[str, Any]]:
    """Ajoute les succès franchis à la session, sans valider.

    Ne réinsère jamais un succès déjà présent: rejouer le scan ne change rien.
    """
    already = {
        achievement_id
        for (achievement_id,) in db.query(UserAchievement.achievement_id)
        .filter(UserAchievement.user_id == user.id)
        .all()
    }
    newly: List[Dict[str, Any]] = []
    for rule in crossed_rules(progress.as_dict(), already):
        entry = UserAchievement(
            user_id=user.id,
            achievement_id=rule.id,
            unlocked_at=now,
            claimed=False,
            reward=rule.reward,
        )
        db.add(entry)
        newly.append(_newly_unlocked_payload(rule, now))

    if newly:
        logger.info(
            "Succès débloqués pour l'utilisateur %s: %s",
            user.id,
            ", ".join(item["id"] for item in newly),
        )
    return newly


def _newly_unlocked_payload(rule: AchievementRule, now: datetime) -> Dict[str, Any]:
    return {
        **rule.as_dict(),
        "unlockedAt": now,
        "claimed": False,
    }


def apply_counter_updates(
    db: Session,
    user: User,
    updates: Mapping[str, int],
    now: datetime,
) -> List[Dict[str, Any]]:
    """Écrase les compteurs nommés sur l'état relu puis relance le scan."""
    progress = read_achievement_progress(user).with_updates(updates)
    write_state(user, achievement_progress=progress)
    return unlock_crossed(db, user, progress, now)


def validate_counter_updates(updates: Mapping[str, Any]) -> Dict[str, int]:
    cleaned: Dict[str, int] = {}
    for key, value in updates.items():
        if key not in PROGRESS_KEYS:
            raise InvalidInputError(
                "unknown_progress_key",
                f"Unknown progress counter: {key}",
                {"allowed": list(PROGRESS_KEYS)},
            )
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError("invalid_progress_value", f"Counter {key} must be an integer")
        if value < 0:
            raise InvalidInputError("invalid_progress_value", f"Counter {key} cannot be negative")
        cleaned[key] = value
    return cleaned


class AchievementService:
    """Évaluation, lecture et réclamation des succès d'un utilisateur."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get_user_achievements(self) -> Dict[str, Any]:
        entries = (
            self.db.query(UserAchievement)
            .filter(UserAchievement.user_id == self.user.id)
            .order_by(UserAchievement.id.asc())
            .all()
        )
        progress = read_achievement_progress(self.user)
        return {
            "unlocked": [serialize_unlocked(entry) for entry in entries],
            "progress": progress.as_dict(),
        }

    def check_and_unlock(self) -> List[Dict[str, Any]]:
        now = self._utcnow()

        def mutate(user: User) -> List[Dict[str, Any]]:
            return unlock_crossed(self.db, user, read_achievement_progress(user), now)

        return update_user_state(self.db, self.user.id, mutate)

    def update_progress_counters(self, updates: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Écrase les compteurs nommés puis relance le scan."""
        cleaned = validate_counter_updates(updates)
        now = self._utcnow()

        def mutate(user: User) -> List[Dict[str, Any]]:
            return apply_counter_updates(self.db, user, cleaned, now)

        return update_user_state(self.db, self.user.id, mutate)

    def claim_reward(self, achievement_id: str) -> Dict[str, Any]:
        now = self._utcnow()

        def mutate(user: User) -> Dict[str, Any]:
            entry = (
                self.db.query(UserAchievement)
                .filter(
                    UserAchievement.user_id == user.id,
                    UserAchievement.achievement_id == achievement_id,
                )
                .first()
            )
            if entry is None:
                raise NotUnlockedError(achievement_id)
            if entry.claimed:
                raise AlreadyClaimedError(achievement_id)

            entry.claimed = True
            entry.claimed_at = now

            xp = XPState.from_total((user.xp_points or 0) + entry.reward)
            progress = read_achievement_progress(user).with_updates(
                {"totalXp": xp.total, "currentLevel": xp.level}
            )
            write_state(user, xp=xp, achievement_progress=progress)
            # Le succès est sérialisé avant le commit, qui expire les objets.
            return {
                "achievement": serialize_unlocked(entry),
                "xp": xp.model_dump(by_alias=True),
            }

        result = update_user_state(self.db, self.user.id, mutate)
        logger.info(
            "Récompense réclamée par l'utilisateur %s pour %s (+%s XP)",
            self.user.id,
            achievement_id,
            result["achievement"]["reward"],
        )
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _utcnow() -> datetime:
        return datetime.now(timezone.utc)
