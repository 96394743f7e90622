"""Domain layer for Electorate.

Pure election logic: models, errors, and side-effect-free services
(eligibility gate, commitment hashing, ranked-choice tally). Nothing in
this package performs I/O or imports from outer layers.
"""
