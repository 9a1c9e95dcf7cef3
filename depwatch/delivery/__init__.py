"""Delivery package for emailed dependency reports."""

from .email import EmailSender, build_subject

__all__ = ["EmailSender", "build_subject"]
