"""
Assistant proxy (Gemini) and charity document audit.
"""

from backend_charity.assistant.audit import DocumentAuditor, extract_pdf_text
from backend_charity.assistant.llm import AssistantClient

__all__ = ["AssistantClient", "DocumentAuditor", "extract_pdf_text"]
