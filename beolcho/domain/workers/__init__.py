"""Workers domain - field worker (반장) applications, profiles and approval"""
