"""Reviews domain - customer reviews with optional photo"""
