"""
ICAS - Investigative Case Analysis System

LLM-assisted analysis of documents, audio, images and financial reports
for law-enforcement case management.
"""

__version__ = "0.1.0"
