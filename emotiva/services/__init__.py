"""
Emotiva services.

Each subpackage owns one collection family; orchestration lives in
emotiva.pipelines.
"""
