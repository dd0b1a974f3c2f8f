# W8 word memory
