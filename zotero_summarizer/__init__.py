"""
zotero-summarizer — summarise the PDFs in a Zotero storage tree.

Finds PDF papers under the reference manager's local storage directory,
extracts their text (docling / pypdf), asks a locally hosted LLM (Ollama via
its OpenAI-compatible endpoint) for a six-section markdown summary, and keeps
a JSON log keyed by content hash so no file is summarised twice.
"""

__version__ = "0.1.0"
