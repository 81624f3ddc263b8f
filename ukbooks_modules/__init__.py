"""
UK Books modules -- thin glue between route handlers and the engines.

    validation  Request schemas and UK identifier checks
    invoice     Invoice pricing (per-line VAT and totals)
    expense     Mileage override and expense totals
    mtd         Making Tax Digital periods and VAT returns
"""
