"""GPS track kinematics, statistics and race replay engine."""

__version__ = "0.1.0"
