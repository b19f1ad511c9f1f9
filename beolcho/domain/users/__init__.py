"""Users domain - accounts, roles and admin member management"""
