"""Integrations package - External service clients"""
from app.integrations.mail_client import MailClient, MailException
from app.integrations.links import build_feedback_url

__all__ = ["MailClient", "MailException", "build_feedback_url"]
