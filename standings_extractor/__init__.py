"""
Standings Extractor
===================
Championship standings importer for race-team PDF tables.

Architecture:
    - Text Extractor: Pulls the ordered text stream out of every PDF page
    - Class Detector: Decides whether a document is LMP2 or GT3 PRO
    - State Machine: Recovers standing rows from the flattened token stream
    - Validator: Reports gaps, duplicates and ordering issues for review
    - Ranking: Prepares parsed rows for import into the standings table

Version: 1.0.0
"""

__version__ = "1.0.0"
