"""Copy fields between dataclasses and between dataclasses and dictionaries."""