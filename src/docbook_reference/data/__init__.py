"""Package data: XML catalog, title-page template and DocBook resource bundle."""
