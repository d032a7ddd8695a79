"""Result sets, pages and the machinery to sort, cache and locate them"""
