"""Models package."""

from .research_document import ResearchDocument
