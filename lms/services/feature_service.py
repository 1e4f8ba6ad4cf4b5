"""
Feature gate backed by the feature_controls table
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from lms.exceptions import NotFound
from lms.models import FeatureControl, FeatureName, User

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = [
    (FeatureName.NOTES, "Notes"),
    (FeatureName.QUIZZES, "Quizzes"),
    (FeatureName.SHORT_ANSWER_QUIZ, "Short Answer Quiz"),
    (FeatureName.CONCEPT_MASTER_AI, "Concept Master AI"),
]


class FeatureGate:
    """
    Premium access checks, queried per call

    Rules:
    - Admins always have access
    - A feature without a control row is free
    - A premium feature requires a premium user
    """

    def has_access(self, db: Session, feature_name: str, user: Optional[User]) -> bool:
        if user is not None and user.is_admin:
            return True

        feature = db.query(FeatureControl).filter(
            FeatureControl.feature_name == feature_name
        ).first()

        if feature is None:
            logger.debug(f"No feature control for {feature_name}, defaulting to free")
            return True

        if not feature.is_premium:
            return True

        return bool(user is not None and user.is_premium)

    def initialize_features(self, db: Session) -> int:
        """Create missing default feature rows; returns how many were added"""
        created = 0
        for feature_name, label in DEFAULT_FEATURES:
            exists = db.query(FeatureControl).filter(
                FeatureControl.feature_name == feature_name
            ).first()
            if not exists:
                db.add(FeatureControl(feature_name=feature_name, label=label))
                created += 1
                logger.info(f"Initialized feature: {label}")
        db.commit()
        return created

    def list_features(self, db: Session) -> List[FeatureControl]:
        return db.query(FeatureControl).order_by(FeatureControl.feature_name).all()

    def set_premium(self, db: Session, feature_name: str, is_premium: bool) -> FeatureControl:
        feature = db.query(FeatureControl).filter(
            FeatureControl.feature_name == feature_name
        ).first()
        if feature is None:
            raise NotFound("Feature not found")

        feature.is_premium = is_premium
        db.commit()
        db.refresh(feature)

        logger.info(f"Feature {feature_name} premium={is_premium}")
        return feature

    def toggle_user_premium(self, db: Session, user_id: UUID) -> User:
        """Flip a user's premium subscription"""
        user = db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")

        user.is_premium = not user.is_premium
        db.commit()
        db.refresh(user)

        logger.info(f"User {user_id} premium={user.is_premium}")
        return user


# Global instance
feature_gate = FeatureGate()
