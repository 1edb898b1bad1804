"""
Analyzer and synthesizer core
"""
