"""
Benchmark suite for jevents tokenizing performance.

Compares event tokenizing against full decoding by the standard library
json module, orjson and ujson, and measures peak memory when streaming.
"""
