"""Domain layer: records, ports, linking strategies and reports."""
