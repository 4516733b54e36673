"""
Text pipeline for the paragraph and phrase indexes.

- segmenter: Sentence and word segmentation for prose
- analyzers: Tokenizer/filter pipelines and the tokenizer registry
- ngrams: Phrase extraction for typeahead
- queries: Query values and query shape selection
- typeahead: Completion, case restoration and ranking
- highlight: Match ranges and emphasis-aware fragments
- results: Stored hit to display item assembly
- schema, stats, fuzzy: Index schema, BM25 helpers and edit distance
"""
