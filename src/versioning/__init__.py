"""Version specifier parsing, ordering and resolution."""
