"""Field grouping engine: flat field rows -> tab tree."""
