"""Stimulus dispatch exports."""

from .stimulus_dispatch import StimulusDispatcher, StimulusError, StimulusReceipt

__all__ = ["StimulusDispatcher", "StimulusError", "StimulusReceipt"]
