"""Stream line-delimited JSON into an Elasticsearch bulk endpoint."""
