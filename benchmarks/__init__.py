"""
Benchmark suite for jsoneat streaming performance.

Compares feeding documents through jsoneat character by character with
whole-document parsing by:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures throughput and peak memory across message shapes typical of a
device gateway.
"""
