"""
Jobs module for the provider crawler.

- crawl_job: crawl phases for one seed (page corpus)
- provider_job: crawl -> extract -> normalize -> persist, per seed
"""
