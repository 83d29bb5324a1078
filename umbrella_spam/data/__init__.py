"""Static reference data: URL lists, regex catalogs and packaged language datasets."""
