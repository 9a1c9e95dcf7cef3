"""
Depwatch - Automated Dependency Update & Security Advisory Monitor

This package checks a fixed list of GitHub repositories for outdated npm
dependencies and open Dependabot alerts, asks a language model to
prioritize the findings, and emails the resulting report.
"""

__version__ = "1.0.0"
__author__ = "Security Automation"
