"""eventflow: simulate branching Event graphs into ordered prompt lists."""

__version__ = "0.1.0"
