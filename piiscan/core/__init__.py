"""piiscan core scanning components.

This package contains the detector interface and its pattern, remote-model
and hybrid implementations, text extraction, file discovery, and the
bounded-concurrency scan orchestrator.
"""
