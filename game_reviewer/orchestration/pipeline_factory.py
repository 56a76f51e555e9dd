# game_reviewer/orchestration/pipeline_factory.py
"""
A factory for creating the review pipeline.

This module's sole responsibility is to construct the list of
`ProcessingStage` objects in their execution order.
"""

from typing import List, Optional

from game_reviewer.core.move_classifier import MoveClassifier
from game_reviewer.orchestration.pipeline_stages import ClassificationStage, PlyCollectionStage
from game_reviewer.types import ProcessingStage

def create_pipeline(classifier: Optional[MoveClassifier] = None) -> List[ProcessingStage]:
    """Builds the two review phases in order: collection, then classification."""
    return [
        PlyCollectionStage(),
        ClassificationStage(classifier or MoveClassifier()),
    ]
