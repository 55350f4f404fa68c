"""Coaching module - topic prompts and the LLM-backed coaching service."""

from .topics import Topic, TOPICS, get_topic
from .service import CoachingService, CoachNotConfiguredError

__all__ = ['Topic', 'TOPICS', 'get_topic', 'CoachingService', 'CoachNotConfiguredError']
